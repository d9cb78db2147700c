"""Import existing YouTube videos as clips."""

import streamlit as st

st.set_page_config(page_title="Import Clips", page_icon="📥", layout="wide")

# Check authentication
if "token" not in st.session_state or "user" not in st.session_state:
    st.error("⚠️ Please login first")
    st.stop()

api_client = st.session_state.api_client

st.title("📥 Import from YouTube")

connection = api_client.youtube_connection()
if connection is None:
    st.warning("⚠️ Connect your YouTube channel first.")
    if st.button("Go to Platforms"):
        st.switch_page("pages/02_platforms.py")
    st.stop()

with st.spinner("Loading your recent uploads..."):
    success, videos = api_client.list_youtube_videos(connection["id"])

if not success:
    st.error(videos)
    st.stop()

if not videos:
    st.info("No videos found on your channel.")
    st.stop()

games = api_client.list_games()
default_game = st.selectbox("Game for the selected videos", games)

selected = []
for video in videos:
    with st.container(border=True):
        col1, col2, col3 = st.columns([1, 4, 1])

        with col1:
            if video.get("thumbnail_url"):
                st.image(video["thumbnail_url"], use_container_width=True)

        with col2:
            st.markdown(f"**{video['title']}**")
            minutes, seconds = divmod(video.get("duration") or 0, 60)
            published = (video.get("published_at") or "")[:10]
            st.caption(f"{minutes}:{seconds:02d} · published {published}")

        with col3:
            if video["already_imported"]:
                st.caption("✅ Imported")
            elif st.checkbox("Import", key=f"import_{video['id']}"):
                selected.append(video)

if st.button(f"Import {len(selected)} selected", type="primary", disabled=not selected):
    payload = [
        {
            "external_video_id": video["id"],
            "display_title": video["title"],
            "description": video.get("description") or "",
            "game": default_game,
            "tags": [default_game],
            "thumbnail_url": video.get("thumbnail_url"),
            "published_at": video.get("published_at"),
        }
        for video in selected
    ]
    ok, result = api_client.import_clips(connection["id"], payload)
    if ok:
        st.success(f"Imported {result['imported']} clips, skipped {result['skipped']}")
        st.rerun()
    else:
        st.error(result)
