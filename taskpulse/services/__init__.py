"""Task store, views and productivity analytics services."""
