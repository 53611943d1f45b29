"""Business services: ingestion, reindexing and question answering."""
