"""Install units, the driver that runs them, and command dispatch."""
