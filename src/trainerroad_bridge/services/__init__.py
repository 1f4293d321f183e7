"""Services for the TrainerRoad bridge."""
