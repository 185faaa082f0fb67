from cafehop.core.config import PORT

bind = f"0.0.0.0:{PORT}"
# Carts and orders are held in process memory, so a single worker serves
# every request; app.py serializes updates across its threads
workers = 1
threads = 4
