"""Product catalogue with ratings, served over FastAPI."""
