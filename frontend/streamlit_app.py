"""ClipDex - Streamlit dashboard."""

import streamlit as st
from components.api_client import APIClient

# Page configuration
st.set_page_config(
    page_title="ClipDex",
    page_icon="🎮",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Initialize API client
if "api_client" not in st.session_state:
    st.session_state.api_client = APIClient()


def clear_session():
    for key in list(st.session_state.keys()):
        del st.session_state[key]


def adopt_token_from_query():
    """
    Pick up the token an identity-provider sign-in redirects back with.

    Returns True when a session was established.
    """
    token = st.query_params.get("token")
    if not token:
        return False

    st.session_state.token = token
    success, user = st.session_state.api_client.get_current_user()
    st.query_params.clear()
    if success:
        st.session_state.user = user
        return True

    del st.session_state["token"]
    return False


def show_login_page():
    """Display login page."""
    st.title("🎮 ClipDex")
    st.subheader("Your gaming clips, one profile")

    if not st.session_state.api_client.health_check():
        st.error("⚠️ Cannot connect to backend API. Please make sure the server is running at http://localhost:8000")
        st.info("To start the backend: `cd backend && python -m uvicorn clipdex.main:app --reload`")
        return

    error = st.query_params.get("error")
    if error:
        st.error(f"Sign-in failed: {error}")

    col1, col2, col3 = st.columns([1, 2, 1])

    with col2:
        providers = st.session_state.api_client.list_providers()
        if providers:
            provider_cols = st.columns(len(providers))
            for provider, col in zip(providers, provider_cols):
                with col:
                    st.link_button(
                        f"Continue with {provider['name']}",
                        st.session_state.api_client.provider_login_url(provider),
                        use_container_width=True
                    )
            st.markdown("---")

        with st.form("login_form"):
            username = st.text_input("Username or Email", placeholder="Enter your username or email")
            password = st.text_input("Password", type="password", placeholder="Enter your password")

            col_login, col_register = st.columns(2)

            with col_login:
                submit_button = st.form_submit_button("Login", use_container_width=True)

            with col_register:
                register_button = st.form_submit_button("Create Account", use_container_width=True)

            if submit_button:
                if not username or not password:
                    st.error("Please enter both username and password")
                else:
                    with st.spinner("Logging in..."):
                        success, result = st.session_state.api_client.login(username, password)

                        if success:
                            st.session_state.token = result["access_token"]
                            st.session_state.user = result["user"]
                            st.rerun()
                        else:
                            st.error(f"Login failed: {result}")

            if register_button:
                st.session_state.show_register = True
                st.rerun()


def show_register_page():
    """Display registration page."""
    st.title("📝 Create Your Account")

    col1, col2, col3 = st.columns([1, 2, 1])

    with col2:
        with st.form("register_form"):
            email = st.text_input("Email", placeholder="your.email@example.com")
            username = st.text_input(
                "Username",
                placeholder="3-50 characters, used in your profile URL"
            )
            display_name = st.text_input("Display Name (Optional)")
            password = st.text_input("Password", type="password", placeholder="At least 8 characters")
            password_confirm = st.text_input("Confirm Password", type="password")

            col_submit, col_back = st.columns(2)

            with col_submit:
                submit_button = st.form_submit_button("Register", use_container_width=True)

            with col_back:
                back_button = st.form_submit_button("Back to Login", use_container_width=True)

            if submit_button:
                if not all([email, username, password, password_confirm]):
                    st.error("Please fill in all required fields")
                elif password != password_confirm:
                    st.error("Passwords do not match")
                elif len(password) < 8:
                    st.error("Password must be at least 8 characters")
                else:
                    with st.spinner("Creating account..."):
                        success, result = st.session_state.api_client.register(
                            email=email,
                            username=username,
                            password=password,
                            display_name=display_name or None
                        )

                        if success:
                            # Auto-login after registration
                            st.session_state.token = result["access_token"]
                            st.session_state.user = result["user"]
                            st.session_state.show_register = False
                            st.rerun()
                        else:
                            st.error(f"Registration failed: {result}")

            if back_button:
                st.session_state.show_register = False
                st.rerun()


def show_main_app():
    """Display the dashboard home after login."""
    api_client = st.session_state.api_client
    user = st.session_state.user

    with st.sidebar:
        st.title("🎮 ClipDex")
        st.write(f"👤 **{user['display_name']}** (@{user['username']})")
        st.link_button("View public profile", api_client.profile_url(user["username"]), use_container_width=True)

        st.markdown("---")

        if st.button("🚪 Logout", use_container_width=True):
            api_client.logout()
            clear_session()
            st.rerun()

    st.title(f"Welcome back, {user['display_name']}! 🎉")

    success, stats = api_client.get_clip_stats()
    if success:
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Clips", stats["total_clips"])
        col2.metric("Views", stats["total_views"])
        col3.metric("Games", stats["games"])
        col4.metric("Featured", stats["featured"])
    else:
        st.error(stats)

    connection = api_client.youtube_connection()
    if connection is None:
        st.info("Connect your YouTube channel to upload or import clips.")
        if st.button("Connect YouTube"):
            st.switch_page("pages/02_platforms.py")
    else:
        st.success(f"YouTube connected: {connection.get('channel_name') or connection['platform_user_id']}")

    col_upload, col_import, col_clips = st.columns(3)
    with col_upload:
        if st.button("⬆️ Upload a clip", use_container_width=True):
            st.switch_page("pages/03_upload.py")
    with col_import:
        if st.button("📥 Import from YouTube", use_container_width=True):
            st.switch_page("pages/04_import.py")
    with col_clips:
        if st.button("🎞️ Manage clips", use_container_width=True):
            st.switch_page("pages/01_clips.py")

    with st.expander("Edit public profile"):
        with st.form("profile_form"):
            display_name = st.text_input("Display name", value=user.get("display_name") or "")
            bio = st.text_area("Bio", value=user.get("bio") or "")
            website = st.text_input("Website", value=user.get("website") or "")
            if st.form_submit_button("Save"):
                success, result = api_client.update_profile(display_name=display_name, bio=bio, website=website)
                if success:
                    st.session_state.user = result
                    st.success("Profile updated")
                    st.rerun()
                else:
                    st.error(result)


def main():
    """Main application entry point."""
    if "show_register" not in st.session_state:
        st.session_state.show_register = False

    adopt_token_from_query()

    if "token" in st.session_state and "user" in st.session_state:
        success, user = st.session_state.api_client.get_current_user()
        if success:
            st.session_state.user = user
            show_main_app()
        else:
            # Session expired
            clear_session()
            st.rerun()
    elif st.session_state.show_register:
        show_register_page()
    else:
        show_login_page()


if __name__ == "__main__":
    main()
