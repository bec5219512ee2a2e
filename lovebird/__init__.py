# Lovebird package
# Modules:
#   config.py       - Settings struct and configuration health check
#   client.py       - Supabase client construction
#   auth.py         - Session client wrapper and login state machine
#   status.py       - /api/self-test status service (FastAPI)
#   diagnostics.py  - Smoke checks behind the /tests page
#   ui.py           - Streamlit glue shared by the pages
