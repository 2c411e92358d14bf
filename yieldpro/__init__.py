"""
Revenue management engine for a single hotel.

Modules:
- config: RMS settings, strategy presets, settings loading
- data: Value parsing, typed records, DuckDB loading and cleaning
- features: KPIs, per-day signals, closures, competitor trends
- recommender: Pricing decisions, suggestions, pipeline, charts
"""
