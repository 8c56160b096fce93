"""
Enums for database models
"""
import enum


class Classification(str, enum.Enum):
    """Performance tier assigned by the classifier"""
    WINNER = "winner"         # Top spenders that hit the ROAS goal
    POTENTIAL = "potential"   # Next tier that hits the ROAS goal, or paused ads that did
    LOSER = "loser"           # Everything else
    NEW = "new"               # Launched within the last 7 days


# Order used when picking ads for enrichment
CLASSIFICATION_PRIORITY = {
    Classification.WINNER: 0,
    Classification.POTENTIAL: 1,
    Classification.NEW: 2,
    Classification.LOSER: 3,
}


class AdStatus(str, enum.Enum):
    """Ad delivery status as returned by the Graph API"""
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    DELETED = "DELETED"
    ARCHIVED = "ARCHIVED"
    PENDING_REVIEW = "PENDING_REVIEW"
    DISAPPROVED = "DISAPPROVED"
    WITH_ISSUES = "WITH_ISSUES"


class ConnectionStatus(str, enum.Enum):
    """State of a brand's Facebook connection"""
    ACTIVE = "active"
    DISCONNECTED = "disconnected"
    EXPIRED = "expired"


class NamingFormat(str, enum.Enum):
    """Whether the ad name follows the MTRX naming convention"""
    MTRX = "mtrx"
    UNPARSED = "unparsed"


class DateWindow(str, enum.Enum):
    """Insight date window requested from the platform"""
    LAST_30D = "last_30d"
    LAST_90D = "last_90d"
    LIFETIME = "lifetime"

    @property
    def date_preset(self) -> str:
        """Graph API date_preset value"""
        if self is DateWindow.LIFETIME:
            return "maximum"
        return self.value


class AnalysisType(str, enum.Enum):
    """Kinds of cached analysis results"""
    CLASSIFICATION = "classification"
    PATTERNS = "patterns"
    BRIEF = "brief"
    STRATEGIC_INSIGHTS = "strategic_insights"
    TEST_SUGGESTIONS = "test_suggestions"


class TaskStatus(str, enum.Enum):
    """Sync run state"""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class BreakoutType(str, enum.Enum):
    """Kinds of breakout events"""
    SPEND_INCREASE = "spend_increase"
    THRESHOLD_CROSSED = "threshold_crossed"


def enum_values(enum_cls) -> list:
    """values_callable for SQLAlchemy Enum columns: store .value, not .name"""
    return [member.value for member in enum_cls]
