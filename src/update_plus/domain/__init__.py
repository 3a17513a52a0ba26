"""Domain layer: pure types shared by the core components."""
