"""
Venue CRM application package: models, entity store services and the CSV importer.
"""
