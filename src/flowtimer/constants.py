"""Defaults and bounds shared by the timer engine, storage and CLI."""

APP_NAME = "flowtimer"

# Keys of the persisted JSON documents
TIMER_STATE_KEY = "timerState"
HISTORY_KEY = "history"
ALARMS_KEY = "alarms"

# Scheduler wake name armed by the engine
TIMER_WAKE_NAME = "flowTimerEnd"

DEFAULT_FOCUS_MINUTES = 25
DEFAULT_BREAK_MINUTES = 5
DEFAULT_TOTAL_SESSIONS = 4

# Clamp bounds for UPDATE_SETTINGS payloads (inclusive)
FOCUS_MINUTES_RANGE = (1, 60)
BREAK_MINUTES_RANGE = (1, 30)
SESSIONS_RANGE = (1, 12)

MS_PER_MINUTE = 60 * 1000

# Analytics: daily focus goal used for the progress percentage
DAILY_GOAL_MINUTES = 4 * 60

NOTIFICATION_TITLE = "Flow"
FOCUS_DONE_MESSAGE = "Take a break!"
BREAK_DONE_MESSAGE = "Time to focus."
