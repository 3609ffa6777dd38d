from fastapi import Request

from renewly.core.config import settings
from renewly.utils.analyzer import InsightsAnalyzer
from renewly.utils.history import ConversationHistoryStore

insights_analyzer = InsightsAnalyzer(
    settings.CURRENCY_FACTORS_JSON,
    anomaly_sigma=settings.ANOMALY_SIGMA,
    savings_limit=settings.SAVINGS_LIMIT,
    renewal_window_days=settings.RENEWAL_WINDOW_DAYS,
    alert_window_days=settings.ALERT_WINDOW_DAYS,
    default_currency=settings.DEFAULT_CURRENCY,
)


def get_analyzer() -> InsightsAnalyzer:
    return insights_analyzer


def get_history_store(request: Request) -> ConversationHistoryStore:
    """History store owned by the running application."""
    store = getattr(request.app.state, "history_store", None)
    if store is None:
        store = ConversationHistoryStore(capacity=settings.HISTORY_CAPACITY)
        request.app.state.history_store = store
    return store
