"""
Ingredient Compliance Matcher - Source Package

Main modules:
- normalization: Ingredient name normalization
- matching: Reference index, layered matcher and allergen detection
- compliance: Aggregation into label reports, snapshots and the engine
- database: SQLAlchemy models and the reference snapshot loader
- utils: Configuration management
"""

__version__ = "1.0.0"
