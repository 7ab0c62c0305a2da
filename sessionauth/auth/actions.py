"""Action names accepted by the auth routes, one URL path segment each."""

SIGN_UP = "sign-up"
SIGN_IN = "sign-in"
SIGN_OUT = "sign-out"
GET_SESSION = "get-session"

POST_ACTIONS = (SIGN_UP, SIGN_IN, SIGN_OUT, GET_SESSION)
GET_ACTIONS = (GET_SESSION,)
