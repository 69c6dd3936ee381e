TEMPLATES = [
    {
        "key": "auth.confirm_signup",
        "subject": "Confirm your CampusNest account",
        "body": (
            "Hi {{ user.full_name }},\n\n"
            "Thanks for signing up. Please confirm your email address:\n"
            "{{ confirm_url }}\n\n"
            "If you did not create an account you can ignore this email.\n"
        ),
        "transactional": True,
    },
    {
        "key": "auth.password_reset",
        "subject": "Reset your CampusNest password",
        "body": (
            "Hi {{ user.full_name }},\n\n"
            "Use the link below to choose a new password:\n"
            "{{ reset_url }}\n"
        ),
        "transactional": True,
    },
    {
        "key": "booking.submitted",
        "subject": "Booking request placed for {{ property.name }}",
        "body": (
            "Hi {{ user.first_name }},\n\n"
            "Your booking request for \"{{ property.name }}\" has been received.\n"
            "Booking ID: {{ booking_id }}\n"
            "Check-in: {{ check_in_date }}\n"
            "Total: {{ total_amount }}\n"
        ),
        "transactional": False,
    },
]
