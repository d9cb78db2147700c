"""Upload a clip to YouTube."""

import streamlit as st

st.set_page_config(page_title="Upload Clip", page_icon="⬆️", layout="wide")

# Check authentication
if "token" not in st.session_state or "user" not in st.session_state:
    st.error("⚠️ Please login first")
    st.stop()

api_client = st.session_state.api_client
MAX_SIZE_MB = 500

st.title("⬆️ Upload a Clip")

connection = api_client.youtube_connection()
if connection is None:
    st.warning("⚠️ Connect your YouTube channel first.")
    if st.button("Go to Platforms"):
        st.switch_page("pages/02_platforms.py")
    st.stop()

st.caption(f"Uploading to **{connection.get('channel_name') or connection['platform_user_id']}**")

games = api_client.list_games()

with st.form("upload_form", clear_on_submit=False):
    video = st.file_uploader("Video file", type=["mp4", "webm", "mov"])
    title = st.text_input("Title", max_chars=100)
    description = st.text_area("Description (optional)")
    game = st.selectbox("Game", games)
    tags = st.text_input("Tags (comma separated)")

    col1, col2 = st.columns(2)
    with col1:
        youtube_visibility = st.selectbox("YouTube privacy", ["unlisted", "public", "private"])
    with col2:
        visibility = st.selectbox("Visibility on ClipDex", ["public", "unlisted", "private"])

    submitted = st.form_submit_button("Upload", type="primary")

if submitted:
    if video is None or not title:
        st.error("Please choose a file and enter a title")
    elif video.size > MAX_SIZE_MB * 1024 * 1024:
        st.error(f"File too large. Maximum size is {MAX_SIZE_MB}MB")
    else:
        with st.spinner("Uploading to YouTube... this can take a few minutes"):
            success, result = api_client.upload_clip(
                video.name,
                video.getvalue(),
                video.type or "video/mp4",
                {
                    "title": title,
                    "description": description,
                    "game": game,
                    "tags": tags,
                    "youtube_visibility": youtube_visibility,
                    "visibility": visibility,
                    "platform_connection_id": connection["id"],
                }
            )

        if success:
            clip = result["clip"]
            st.success("✅ Uploaded!")
            st.image(clip["thumbnail_url"], width=320)
            st.markdown(f"[Watch on YouTube]({clip['url']})")
        else:
            st.error(f"Upload failed: {result}")
