from __future__ import annotations

import streamlit as st

from services.api_client import api_url
from views.node_graph import page_node_graph

st.set_page_config(page_title="Lightning Node Graph", layout="wide")


def main() -> None:
    st.title("Lightning Node Graph")
    base_url = st.sidebar.text_input("Graph API", api_url())
    if st.sidebar.button("Reload"):
        st.rerun()
    page_node_graph(base_url)


if __name__ == "__main__":
    main()
