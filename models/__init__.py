from models.db_storage import DBStorage

# Configured by create_app() (or a test fixture) via storage.configure() + storage.reload()
storage = DBStorage()
