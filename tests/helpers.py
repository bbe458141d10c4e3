API_BASE = "https://api.test/v1"
