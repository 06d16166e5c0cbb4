import mysql.connector
import json
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from bazaar.core.config import CONFIG_PATH

def create_db(config_path=CONFIG_PATH):
    """Create the MySQL schema named in config.json; SQLite needs nothing."""
    if not os.path.exists(config_path):
        print(f"{config_path} not found; the store defaults to in-memory SQLite")
        return

    with open(config_path, "r") as f:
        db_conf = json.load(f).get("database")
    if not db_conf:
        print("No 'database' section in config; the store defaults to in-memory SQLite")
        return

    db_name = db_conf.get("name", "bazaar_board")
    try:
        cnx = mysql.connector.connect(
            user=db_conf.get("user", "root"),
            password=db_conf.get("password", ""),
            host=db_conf.get("host", "localhost"),
            port=db_conf.get("port", 3306)
        )
    except mysql.connector.Error as err:
        print(f"Error connecting to MySQL: {err}")
        return

    cursor = cnx.cursor()
    try:
        cursor.execute(
            f"CREATE DATABASE IF NOT EXISTS `{db_name}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        print(f"Database '{db_name}' created or already exists.")
    except mysql.connector.Error as err:
        print(f"Failed creating database: {err}")
    finally:
        cursor.close()
        cnx.close()

if __name__ == "__main__":
    create_db()
