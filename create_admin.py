import asyncio
import sys

from core.config import settings
from core.database import close_client, get_db
from core.security import create_access_token
from core.system_settings import initialize_settings
from models.user import User

async def create_admin(full_name: str, email: str):
    """
    Bootstrap the first admin profile and the default reward settings.
    Prints a short-lived token for local use.
    """
    db = get_db()
    print(f"Connecting to MongoDB ({settings.DB_NAME})...")

    existing_user = await db.users.find_one({"email": email})
    if existing_user:
        print("Admin user already exists.")
        user_id = existing_user["_id"]
    else:
        print("Creating admin user...")
        admin_user = User(full_name=full_name, email=email, role="admin")
        await db.users.insert_one(admin_user.model_dump(by_alias=True))
        user_id = admin_user.id
        print("Admin created successfully!")

    await initialize_settings(db)
    print(f"Token: {create_access_token(user_id)}")
    close_client()

if __name__ == "__main__":
    name = sys.argv[1] if len(sys.argv) > 1 else "System Admin"
    email = sys.argv[2] if len(sys.argv) > 2 else "admin@workquest.app"
    asyncio.run(create_admin(name, email))
