"""Fish survey biomass pipeline.

Turns raw underwater visual census spreadsheets (abundance per size band,
colour-flagged non-instantaneous counts) into a per-survey, per-species
abundance and biomass (kg/ha) table.
"""

__version__ = "0.1.0"
