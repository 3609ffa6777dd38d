"""
Insights Router
Runs the analytics pipeline over a snapshot supplied by the caller
"""
import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, Query

from renewly.models.records import FinancialSnapshot
from renewly.routers.dependencies import get_analyzer
from renewly.utils.analyzer import InsightsAnalyzer

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("")
def generate_insights(
    snapshot: FinancialSnapshot,
    period: str = Query(default="30d", description="7d, 30d, 90d or 1y"),
    analyzer: InsightsAnalyzer = Depends(get_analyzer),
) -> Dict:
    """
    Spending timeline, anomalies, savings, budget health, forecast and
    renewal clusters for the given subscriptions, bills and budget.
    """
    try:
        return analyzer.generate_for(snapshot, period=period)
    except Exception as e:
        logger.error(f"Error generating insights: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error generating insights: {str(e)}")


@router.post("/persona")
def get_persona(snapshot: FinancialSnapshot, analyzer: InsightsAnalyzer = Depends(get_analyzer)) -> Dict:
    """Behavioural persona plus personalised tips."""
    try:
        return analyzer.tips(snapshot)
    except Exception as e:
        logger.error(f"Error building persona: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error building persona: {str(e)}")


@router.post("/summary")
def get_summary(snapshot: FinancialSnapshot, analyzer: InsightsAnalyzer = Depends(get_analyzer)) -> Dict:
    """Monthly and yearly totals, bill counts, category overlaps and budget analysis."""
    try:
        return analyzer.summary(snapshot)
    except Exception as e:
        logger.error(f"Error building spending summary: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error building spending summary: {str(e)}")


@router.post("/trends")
def get_trends(
    snapshot: FinancialSnapshot,
    time_range: str = Query(default="monthly", alias="timeRange", description="monthly, quarterly or yearly"),
    analyzer: InsightsAnalyzer = Depends(get_analyzer),
) -> Dict:
    """Spending per month, quarter or year, category shares and the month-over-month comparison."""
    try:
        return analyzer.trends(snapshot, time_range=time_range)
    except Exception as e:
        logger.error(f"Error building spending trends: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error building spending trends: {str(e)}")
