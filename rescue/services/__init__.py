"""Business services: submissions, chat, catalog, settings, images and notifications."""
