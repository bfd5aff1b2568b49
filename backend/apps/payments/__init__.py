"""
Payments app.
Starts and settles MTN MoMo and Stripe payments for orders.
"""
