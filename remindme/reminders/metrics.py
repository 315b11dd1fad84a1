from prometheus_client import Counter


reminders_created_total = Counter(
    "reminders_created_total",
    "Total reminders stored",
)

reminders_deleted_total = Counter(
    "reminders_deleted_total",
    "Total reminders removed from the store",
)

notifications_armed_total = Counter(
    "reminder_notifications_armed_total",
    "Total notifications armed on the host",
)

notifications_arm_failed_total = Counter(
    "reminder_notifications_arm_failed_total",
    "Total reminders stored without a notification because arming failed",
)

notifications_cancelled_total = Counter(
    "reminder_notifications_cancelled_total",
    "Total cancel requests sent to the host",
)

notifications_delivered_total = Counter(
    "reminder_notifications_delivered_total",
    "Total notifications delivered while the app was in the foreground",
)

notifications_tapped_total = Counter(
    "reminder_notifications_tapped_total",
    "Total delivered notifications opened by the user",
)
