"""Framework-agnostic conversation engine shared by every frontend."""
