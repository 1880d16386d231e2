"""
Georeferencing calibration test suite

Structure:
- unit/: Unit tests for individual components (data model, geo helpers,
  GPS input, calibration, loader, CLI, logging)
"""
