"""
Enumerated values and their display labels
"""
from enum import Enum


class ProjectType(str, Enum):
    CLIENT = "client"
    INTERNAL = "internal"
    DEMO = "demo"


class ProjectCategory(str, Enum):
    HP = "hp"
    LP = "lp"
    LINE_OFFICIAL = "line_official"
    LINE_MINI = "line_mini"
    APP = "app"
    OTHER = "other"


class ProjectStatus(str, Enum):
    CONSULTING = "consulting"
    ESTIMATING = "estimating"
    IN_PROGRESS = "in_progress"
    WAITING_REVIEW = "waiting_review"
    COMPLETED = "completed"
    MAINTENANCE = "maintenance"
    LOST = "lost"


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class ActivityType(str, Enum):
    MEETING = "meeting"
    CALL = "call"
    EMAIL = "email"
    OTHER = "other"


PROJECT_TYPE_LABELS = {
    ProjectType.CLIENT: "受託案件",
    ProjectType.INTERNAL: "自社プロダクト",
    ProjectType.DEMO: "デモ・サンプル",
}

PROJECT_CATEGORY_LABELS = {
    ProjectCategory.HP: "HP",
    ProjectCategory.LP: "LP",
    ProjectCategory.LINE_OFFICIAL: "LINE公式",
    ProjectCategory.LINE_MINI: "LINEミニ",
    ProjectCategory.APP: "アプリ",
    ProjectCategory.OTHER: "その他",
}

PROJECT_STATUS_LABELS = {
    ProjectStatus.CONSULTING: "相談中",
    ProjectStatus.ESTIMATING: "見積中",
    ProjectStatus.IN_PROGRESS: "制作中",
    ProjectStatus.WAITING_REVIEW: "確認待ち",
    ProjectStatus.COMPLETED: "完了",
    ProjectStatus.MAINTENANCE: "保守中",
    ProjectStatus.LOST: "失注",
}

TASK_STATUS_LABELS = {
    TaskStatus.TODO: "未着手",
    TaskStatus.IN_PROGRESS: "進行中",
    TaskStatus.DONE: "完了",
}

TASK_PRIORITY_LABELS = {
    TaskPriority.LOW: "低",
    TaskPriority.MEDIUM: "中",
    TaskPriority.HIGH: "高",
}

INVOICE_STATUS_LABELS = {
    InvoiceStatus.DRAFT: "下書き",
    InvoiceStatus.SENT: "送付済",
    InvoiceStatus.PAID: "入金済",
    InvoiceStatus.OVERDUE: "期限超過",
    InvoiceStatus.CANCELLED: "キャンセル",
}

ACTIVITY_TYPE_LABELS = {
    ActivityType.MEETING: "打合せ",
    ActivityType.CALL: "電話",
    ActivityType.EMAIL: "メール",
    ActivityType.OTHER: "その他",
}

ACTIVITY_TYPE_ICONS = {
    ActivityType.MEETING: "🤝",
    ActivityType.CALL: "📞",
    ActivityType.EMAIL: "📧",
    ActivityType.OTHER: "📝",
}
