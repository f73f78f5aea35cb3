from app.models.property import Property
from app.models.role import Role, role_permissions, user_roles
from app.models.permission import Permission
from app.models.user import User
from app.models.room import Room
from app.models.booking import Booking
