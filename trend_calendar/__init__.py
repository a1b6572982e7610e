"""
Utilities for the search trend calendar dashboard.

This package contains modules for loading keyword search-volume data,
ranking keywords by monthly growth, classifying keywords, and generating
AI marketing insights.
"""

# Package version
__version__ = '1.0.0'

# Import main functions to make them easier to use
from .trend_calculator import (
    average_volume,
    growth_for,
    rank_keywords,
    previous_months
)

from .keyword_classifier import classify

from .data_processing import (
    load_keyword_dataset,
    calculate_dataset_statistics
)

from .insights import (
    build_insight_request,
    generate_insights,
    handle_insight_request,
    month_over_month,
    InsightSession
)

from .models import (
    KeywordCategory,
    KeywordMetrics,
    KeywordSeries
)

# Define what gets imported with "from trend_calendar import *"
__all__ = [
    # From trend_calculator
    'average_volume',
    'growth_for',
    'rank_keywords',
    'previous_months',

    # From keyword_classifier
    'classify',

    # From data_processing
    'load_keyword_dataset',
    'calculate_dataset_statistics',

    # From insights
    'build_insight_request',
    'generate_insights',
    'handle_insight_request',
    'month_over_month',
    'InsightSession',

    # From models
    'KeywordCategory',
    'KeywordMetrics',
    'KeywordSeries'
]
