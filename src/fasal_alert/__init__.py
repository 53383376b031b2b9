"""
Weather-Driven Risk Advisory Engine
===================================

Turns current weather into crop-specific Bangla advisories for farmers:
- Weather: cache-first OpenWeatherMap acquisition with request dedup,
  daily quota tracking and stale-data fallback
- Risk: weighted weather/storage scoring into Low/Medium/High/Critical
- Alerts: prioritized action lists, Bangla messages, SMS for Critical risk
- Scheduling: per-farmer suppression window and batched runs over all farmers
"""

__version__ = "1.0.0"
