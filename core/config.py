import os
from dotenv import load_dotenv
load_dotenv()

DATABASE_URL = os.getenv('DATABASE_URL')
FRONTEND_URL = os.getenv('FRONTEND_URL', 'http://127.0.0.1:3000')
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

BUSINESS_TIMEZONE = os.getenv('BUSINESS_TIMEZONE', 'America/Sao_Paulo')

SERVICE_WINDOW_START = os.getenv('SERVICE_WINDOW_START', '10:00:00')
SERVICE_WINDOW_END = os.getenv('SERVICE_WINDOW_END', '16:00:00')
SLOT_INTERVAL_MINUTES = int(os.getenv('SLOT_INTERVAL_MINUTES', '60'))

CLIENT_HORIZON_DAYS = int(os.getenv('CLIENT_HORIZON_DAYS', '30'))
MASTER_HORIZON_DAYS = int(os.getenv('MASTER_HORIZON_DAYS', '90'))

# "exact" or "contains"
RECURRING_MATCH_MODE = os.getenv('RECURRING_MATCH_MODE', 'exact')
