"""TrainerRoad session bridge.

Connects local coaching-app users to their TrainerRoad accounts by driving
the web login form, persisting the resulting cookie bundle and replaying it
against TrainerRoad's internal JSON endpoints.
"""

__version__ = "0.1.0"
