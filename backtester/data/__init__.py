from backtester.data.historical import MockHistoricalData, YfinanceHistoricalData, get_data_source

__all__ = ["MockHistoricalData", "YfinanceHistoricalData", "get_data_source"]
