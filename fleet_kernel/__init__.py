"""
fleet_kernel -- Shared infrastructure for the fleet earnings import.

Structured logging, typed exceptions, injectable clock, SQLAlchemy base,
engine helpers and the Driver / Vehicle / DailyEntry models.
"""
