import hmac
from flask import render_template, redirect, url_for, request, session, flash, current_app
from app.auth import auth
from app.auth.decorators import SESSION_FLAG, is_authenticated


def check_credentials(username: str, password: str) -> bool:
    """Compare against the single configured pair in constant time."""
    expected_user = current_app.config.get('GATE_USERNAME') or ''
    expected_pass = current_app.config.get('GATE_PASSWORD') or ''
    user_ok = hmac.compare_digest(username.encode(), expected_user.encode())
    pass_ok = hmac.compare_digest(password.encode(), expected_pass.encode())
    return user_ok and pass_ok


@auth.route('/login', methods=['GET', 'POST'])
def login():
    """
    GET  → render login form.
    POST → check the fixed credential pair, set the session flag, go to billing.
    """
    # Flag already set for this browser session → skip the form
    if is_authenticated():
        return redirect(url_for('billing.index'))

    error = None

    if request.method == 'POST':
        username = request.form.get('username', '').strip()
        password = request.form.get('password', '')

        if not username or not password:
            error = 'Username and password are required.'
        elif not check_credentials(username, password):
            # Deliberately vague: don't reveal which field was wrong
            current_app.logger.warning(f"Failed login attempt for username: {username}")
            error = 'Invalid username or password.'
        else:
            session.clear()
            session[SESSION_FLAG] = True
            session.permanent     = False   # cookie dies with the browser session

            current_app.logger.info(f"User {username} logged in successfully.")
            return redirect(url_for('billing.index'))

    return render_template('auth/login.html', title='Login', error=error)


@auth.route('/logout')
def logout():
    """Clear the session (cart included) and redirect to login."""
    session.clear()
    flash('You have been logged out.', 'info')
    return redirect(url_for('auth.login'))
