from django.dispatch import Signal

# Sent by the broker consumer for every order event it receives.
# kwargs: topic, event (notifications.events.OrderEvent)
order_event_received = Signal()
