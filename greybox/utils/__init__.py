"""Settings, logging and timing helpers shared by the rest of the package."""
