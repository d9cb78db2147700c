"""Platform connections page."""

import streamlit as st

st.set_page_config(page_title="Platforms", page_icon="🔗", layout="wide")

# Check authentication
if "token" not in st.session_state or "user" not in st.session_state:
    st.error("⚠️ Please login first")
    st.stop()

api_client = st.session_state.api_client

st.title("🔗 Connected Platforms")

# Result of the OAuth round trip
if st.query_params.get("success") == "true":
    st.success("✅ Platform connected")
    st.query_params.clear()
elif st.query_params.get("error"):
    st.error(f"Connection failed: {st.query_params.get('error')}")
    st.query_params.clear()

success, platforms = api_client.list_platforms()
if not success:
    st.error(platforms)
    st.stop()

for platform in platforms:
    with st.container(border=True):
        col1, col2 = st.columns([3, 1])
        connection = platform.get("connection")

        with col1:
            st.markdown(f"### {platform['name']}")
            st.caption(platform["description"])

            if connection:
                name = connection.get("channel_name") or connection["platform_user_id"]
                st.markdown(f"Connected as **{name}**")
                if connection.get("channel_url"):
                    st.markdown(f"[Open channel]({connection['channel_url']})")
                if connection.get("last_sync_at"):
                    st.caption(f"Last sync: {connection['last_sync_at'][:19].replace('T', ' ')}")

        with col2:
            if not platform["available"]:
                st.button("Coming soon", key=f"soon_{platform['id']}", disabled=True, use_container_width=True)
                continue

            ok, url = api_client.get_connect_url(platform["id"])
            label = "🔄 Reconnect" if connection else "➕ Connect"
            if ok:
                st.link_button(label, url, use_container_width=True)
            else:
                st.error(url)

            if connection:
                if st.button("Disconnect", key=f"disconnect_{connection['id']}", use_container_width=True):
                    ok, result = api_client.disconnect_platform(connection["id"])
                    if ok:
                        st.success("Disconnected. Your clips stay on ClipDex and on YouTube.")
                        st.rerun()
                    else:
                        st.error(result)
