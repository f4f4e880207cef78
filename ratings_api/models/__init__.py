"""
SQLAlchemy models for the group ratings service.
"""
# Core entities
from ratings_api.models.user import User
from ratings_api.models.group import Group, GroupMembership, Role

# Restaurants & menu
from ratings_api.models.restaurant import Restaurant, MenuItem, restaurant_menu_items

# Ratings
from ratings_api.models.rating import Rating

# Notifications
from ratings_api.models.notification import RatingNotification, PushSubscription

# IP blacklist
from ratings_api.models.ip_blacklist import BlacklistedIp


__all__ = [
    # Core
    "User",
    "Group",
    "GroupMembership",
    "Role",
    # Restaurants
    "Restaurant",
    "MenuItem",
    "restaurant_menu_items",
    # Ratings
    "Rating",
    # Notifications
    "RatingNotification",
    "PushSubscription",
    # IP blacklist
    "BlacklistedIp",
]
