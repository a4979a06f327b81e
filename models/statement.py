# models/statement.py

# Column order for the per-statement transactions CSV
STATEMENT_EXPORT_COLUMNS = [
    ("Date", "date"),
    ("Type", "type"),
    ("Description", "description"),
    ("Amount", "amount"),
    ("Reference", "reference"),
]
