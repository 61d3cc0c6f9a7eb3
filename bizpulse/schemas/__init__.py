from bizpulse.schemas.notification import (
    NotificationActionSchema,
    NotificationCreate,
    NotificationCreated,
    NotificationResponse,
    NotificationListResponse,
    NotificationStats,
)
from bizpulse.schemas.reports import (
    DateRange,
    SummaryLimits,
    SummaryRequest,
)
