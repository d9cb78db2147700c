"""Clip management page."""

import streamlit as st
import pandas as pd

st.set_page_config(page_title="My Clips", page_icon="🎞️", layout="wide")

# Check authentication
if "token" not in st.session_state or "user" not in st.session_state:
    st.error("⚠️ Please login first")
    st.stop()

api_client = st.session_state.api_client
VISIBILITY_OPTIONS = ["PUBLIC", "UNLISTED", "PRIVATE"]

st.title("🎞️ My Clips")

success, clips = api_client.list_clips()
if not success:
    st.error(clips)
    st.stop()

if not clips:
    st.info("No clips yet. Upload one or import from YouTube.")
    st.stop()

games = api_client.list_games()

tab1, tab2 = st.tabs(["📋 Clips", "📊 Overview"])

with tab1:
    for clip in clips:
        with st.container(border=True):
            col1, col2, col3 = st.columns([1, 3, 1])

            with col1:
                if clip.get("thumbnail_url"):
                    st.image(clip["thumbnail_url"], use_container_width=True)

            with col2:
                featured = "⭐ " if clip["is_featured"] else ""
                st.markdown(f"### {featured}{clip['display_title']}")
                st.caption(
                    f"{clip['game']} · {clip['view_count']} views · {clip['visibility'].lower()} · "
                    f"uploaded {clip['uploaded_at'][:10]}"
                )
                st.markdown(f"[Open on YouTube]({clip['external_url']})")

            with col3:
                editing_key = f"edit_{clip['id']}"
                if st.button("✏️ Edit", key=f"edit_btn_{clip['id']}", use_container_width=True):
                    st.session_state[editing_key] = not st.session_state.get(editing_key, False)

                confirm_key = f"confirm_delete_{clip['id']}"
                if st.button("🗑️ Delete", key=f"delete_btn_{clip['id']}", use_container_width=True):
                    st.session_state[confirm_key] = True

            if st.session_state.get(confirm_key):
                st.warning(f"Delete **{clip['display_title']}**?")
                also_youtube = st.checkbox(
                    "Also delete the video from YouTube (cannot be undone)",
                    key=f"delete_yt_{clip['id']}",
                    disabled=clip.get("platform_connection_id") is None
                )
                col_yes, col_no = st.columns(2)
                with col_yes:
                    if st.button("Confirm delete", key=f"confirm_btn_{clip['id']}", type="primary"):
                        ok, result = api_client.delete_clip(clip["id"], delete_from_youtube=also_youtube)
                        if ok:
                            st.session_state.pop(confirm_key, None)
                            st.success("Clip deleted")
                            st.rerun()
                        else:
                            st.error(result)
                with col_no:
                    if st.button("Cancel", key=f"cancel_btn_{clip['id']}"):
                        st.session_state.pop(confirm_key, None)
                        st.rerun()

            if st.session_state.get(editing_key):
                with st.form(f"edit_form_{clip['id']}"):
                    title = st.text_input("Title", value=clip["display_title"], max_chars=255)
                    description = st.text_area("Description", value=clip["description"])
                    game_options = games if clip["game"] in games else games + [clip["game"]]
                    game = st.selectbox("Game", game_options, index=game_options.index(clip["game"]))
                    tags = st.text_input("Tags (comma separated)", value=", ".join(clip["tags"]))
                    visibility = st.selectbox(
                        "Visibility on ClipDex",
                        VISIBILITY_OPTIONS,
                        index=VISIBILITY_OPTIONS.index(clip["visibility"])
                    )
                    is_featured = st.checkbox("Featured on profile", value=clip["is_featured"])

                    if st.form_submit_button("Save"):
                        ok, result = api_client.update_clip(
                            clip["id"],
                            display_title=title,
                            description=description,
                            game=game,
                            tags=[t.strip() for t in tags.split(",") if t.strip()],
                            visibility=visibility,
                            is_featured=is_featured
                        )
                        if ok:
                            st.session_state[editing_key] = False
                            st.success("Clip updated")
                            st.rerun()
                        else:
                            st.error(result)

with tab2:
    df = pd.DataFrame(clips)
    st.subheader("Views by game")
    st.bar_chart(df.groupby("game")["view_count"].sum())

    st.subheader("All clips")
    st.dataframe(
        df[["display_title", "game", "view_count", "visibility", "is_featured", "uploaded_at"]],
        use_container_width=True,
        hide_index=True
    )
