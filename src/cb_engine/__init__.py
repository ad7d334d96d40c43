"""Career Buddy engine: prompt building, gateway, parsing, caching and listings."""
