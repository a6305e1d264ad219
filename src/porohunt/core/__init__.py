"""Game rules: spawning, catching, progression and items."""
