"""Discord adapter package."""
