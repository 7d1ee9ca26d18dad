from rest_framework.throttling import AnonRateThrottle, UserRateThrottle


class MessageRateThrottle(UserRateThrottle):
    rate = "60/minute"


class ContactFormThrottle(AnonRateThrottle):
    rate = "10/hour"


class EngagementRateThrottle(UserRateThrottle):
    rate = "120/minute"
