from sqlalchemy.orm import Session
from wims.core.security import hash_password
from wims.models.supplier import Supplier
from wims.models.user import User

# Change these creds anytime (dev defaults)
DEFAULT_USERS = [
    ("admin", "Admin", "admin", "admin123"),
    ("manager", "Manager", "manager", "manager123"),
    ("viewer", "Viewer", "viewer", "viewer123"),
]


def seed_users_if_empty(db: Session):
    if db.query(User).count() > 0:
        return

    db.add_all(
        [
            User(username=u, name=n, role=r, password_hash=hash_password(pw))
            for u, n, r, pw in DEFAULT_USERS
        ]
    )
    db.commit()


def seed_suppliers_if_empty(db: Session):
    if db.query(Supplier).count() > 0:
        return

    db.add(Supplier(name="ACME Industrial", contact_person="Jane Roe", email="orders@acme.example"))
    db.commit()
