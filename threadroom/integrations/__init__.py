# Host and storage integrations
