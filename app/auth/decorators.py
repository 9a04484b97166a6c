"""
app/auth/decorators.py
----------------------
Route protection for the session gate.
Usage:
    from app.auth.decorators import login_required

    @billing.route('/')
    @login_required
    def index():
        ...
"""
from functools import wraps
from flask import session, redirect, url_for, flash

SESSION_FLAG = 'authenticated'


def is_authenticated() -> bool:
    return bool(session.get(SESSION_FLAG))


def login_required(f):
    """
    Redirect to the login page unless the session flag is set.
    The flag lives only as long as the browser session.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        if not is_authenticated():
            flash('Please log in to access this page.', 'warning')
            return redirect(url_for('auth.login'))
        return f(*args, **kwargs)
    return decorated
