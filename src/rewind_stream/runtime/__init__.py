"""Runtime services shared by the buffer implementations."""
