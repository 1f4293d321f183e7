"""FastAPI layer for the TrainerRoad bridge."""
