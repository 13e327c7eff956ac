"""Application services orchestrating the notification core."""
