class InternalURIs:
    API = "/api"
    V1 = API + "/v1"
    ASSISTANT = V1 + "/assistant"
    CLASSIFY = ASSISTANT + "/classify"
    EXECUTE = ASSISTANT + "/execute"
    CHAT = ASSISTANT + "/chat"
    TOP_MATCHES = ASSISTANT + "/top-matches"


WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

MONTHS = {
    "jan": 1,
    "january": 1,
    "feb": 2,
    "february": 2,
    "mar": 3,
    "march": 3,
    "apr": 4,
    "april": 4,
    "may": 5,
    "jun": 6,
    "june": 6,
    "jul": 7,
    "july": 7,
    "aug": 8,
    "august": 8,
    "sep": 9,
    "sept": 9,
    "september": 9,
    "oct": 10,
    "october": 10,
    "nov": 11,
    "november": 11,
    "dec": 12,
    "december": 12,
}
