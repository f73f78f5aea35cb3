"""Reusable data sets for backend test scenarios."""

TEST_ACCESS_SECRET = "test-access-secret"
TEST_REFRESH_SECRET = "test-refresh-secret"

GRAND_PLAZA_PROPERTY = {
    "code": "HOTEL001",
    "name": "Grand Plaza Hotel",
    "property_type": "HOTEL",
    "city": "Mumbai",
    "country": "India",
}

GRAND_PLAZA_ADMIN = {
    "full_name": "Grand Plaza Admin",
    "email": "admin@grandplaza.com",
    "password": "admin123",
    "user_type": "PROPERTY_ADMIN",
}

MASTER_ADMIN = {
    "full_name": "Master Admin",
    "email": "master@hms.com",
    "password": "Master@123",
    "user_type": "MASTER_ADMIN",
}

STAFF_MEMBER = {
    "full_name": "Front Desk Staff",
    "email": "staff@grandplaza.com",
    "password": "Staff@123",
    "user_type": "STAFF",
}

ROOM_PAYLOAD = {
    "room_number": "101",
    "room_type": "Deluxe",
    "floor": 1,
    "capacity": 2,
    "price_per_night": 2500,
    "amenities": ["wifi", "tv"],
}

BOOKING_PAYLOAD = {
    "guest_name": "Asha Rao",
    "guest_email": "asha@example.com",
    "guest_phone": "+919876543210",
    "check_in_date": "2030-05-10",
    "check_out_date": "2030-05-13",
}

PROPERTY_ACCESS_DENIED = {
    "user_property_id": 5,
    "other_property_id": 7,
    "expected_status_code": 403,
    "expected_message": "Access denied. You can only access your assigned property",
}
