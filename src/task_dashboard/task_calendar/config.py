"""Configuration constants for the task calendar."""

import os

# Backend Configuration
DEFAULT_BACKEND_URL = os.getenv(
    "TASK_CALENDAR_BACKEND_URL",
    "https://script.google.com/macros/s/"
    "AKfycbx426p_teOMVFcMG22RngcroTClA1vB2Z4M1CN9AjAhChiyjVPCO-5wIPM7m6cQHMgx/exec",
)
DEFAULT_REQUEST_TIMEOUT = float(os.getenv("TASK_CALENDAR_TIMEOUT", "30.0"))  # seconds
FETCH_ACTION = "fetch"

# Sheet Names
WORKING_DAY_SHEET = "Working Day Calendar"
DELEGATION_SHEET = "DELEGATION"
CHECKLIST_SHEET = "Checklist"

# Rows
HEADER_ROW_COUNT = 1  # row 0 of every fetched table is a header
ROW_INDEX_OFFSET = 2  # table position -> sheet row number

# Session
ADMIN_ROLE = "admin"
DEFAULT_ROLE = "user"
# Identity used by the MCP server, which has no login flow of its own
SESSION_USERNAME = os.getenv("TASK_CALENDAR_USERNAME", "")
SESSION_DISPLAY_NAME = os.getenv("TASK_CALENDAR_DISPLAY_NAME", "")
SESSION_ROLE = os.getenv("TASK_CALENDAR_ROLE", DEFAULT_ROLE)

# Aggregation
NO_TIME_SLOT = "no-time"
ALL_NAMES = "all"
EVENT_DURATION_MINUTES = 60
WEEKLY_STRIDE = 7

# Task Defaults
DEFAULT_STATUS = "pending"
DEFAULT_PRIORITY = "normal"
CHECKLIST_DONE_MARKER = "yes"
DELEGATION_DONE_MARKER = "done"

# MCP Server Configuration
DEFAULT_MCP_HOST = "localhost"
DEFAULT_MCP_PORT = 3000
DEFAULT_MCP_SERVER_NAME = "task-calendar"

# User-facing error prefix for failed refreshes
REFRESH_ERROR_PREFIX = "Failed to load data"
