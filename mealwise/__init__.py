"""
Mealwise: photo-based meal estimates and gentle nutrition guidance.

Layers:
- ``domain``: pure models and engines (estimate normalization, product
  matching, aggregation, targets, nudges, insights)
- ``application``: async services orchestrating the ports
- ``infrastructure``: OpenAI, OpenFoodFacts and in-memory adapters
"""

__version__ = "0.1.0"
