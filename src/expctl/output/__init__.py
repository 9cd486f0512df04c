"""Output layer — renders ServiceResult as JSON, quiet text, or Rich tables."""
