"""Service layer."""

from .forecast_service import ForecastService, build_forecast_service, merge_sessions_by_day

__all__ = ["ForecastService", "build_forecast_service", "merge_sessions_by_day"]
