"""discord_monitor - Discord message ingestion and reporting bot."""
