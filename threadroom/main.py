import logging
from fastapi import FastAPI
from threadroom import __version__
from threadroom.config import get_settings
from threadroom.api.routes import discuss, slack

settings = get_settings()

# Configure application logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# Set log level for app modules
logger = logging.getLogger("threadroom")
logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)

app = FastAPI(
    title=settings.app_name,
    description="Turn chat threads into discussions",
    version=__version__,
)

# Include routers
app.include_router(discuss.router, prefix="/api/discuss", tags=["Discuss"])
app.include_router(slack.router, prefix="/api/slack", tags=["Slack"])


@app.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.app_name} - /{settings.command_name} turns threads into discussions",
        "version": __version__,
        "endpoints": {
            "discuss": "/api/discuss",
            "slack_commands": "/api/slack/commands",
            "health": "/health",
            "docs": "/docs",
        },
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": settings.app_name}
