"""Shared HTML helpers and CSS for the Streamlit pages."""
from textwrap import dedent

import streamlit as st


def html_block(template: str) -> str:
    """
    Normalize multi-line HTML so Streamlit doesn't treat it as Markdown code.

    Lines with 4+ leading spaces would render as code blocks, so each line
    is dedented and left-stripped.
    """
    lines = dedent(template).splitlines()
    return "\n".join(line.lstrip() for line in lines).strip()


def inject_base_styles() -> None:
    """Festive palette and Khmer-friendly fonts used by every page."""
    st.markdown(
        html_block(
            """
            <style>
            @import url('https://fonts.googleapis.com/css2?family=Kantumruy+Pro:wght@400;600;700&family=Moul&display=swap');

            .stApp {
                background: linear-gradient(180deg, #7f1d1d 0%, #b91c1c 22%, #fef2f2 22%);
                font-family: 'Kantumruy Pro', sans-serif;
            }

            #MainMenu {visibility: hidden;}
            footer {visibility: hidden;}

            .hero {
                text-align: center;
                color: #ffffff;
                padding: 24px 12px 36px;
            }
            .hero-badge {
                display: inline-block;
                padding: 6px 16px;
                border-radius: 999px;
                border: 1px solid rgba(250, 204, 21, 0.6);
                color: #fef3c7;
                font-size: 13px;
                letter-spacing: 0.08em;
                text-transform: uppercase;
            }
            .hero-title {
                font-family: 'Moul', serif;
                font-size: 34px;
                line-height: 1.4;
                margin: 16px 0 8px;
            }
            .hero-highlight {
                color: #fde047;
                font-size: 44px;
                font-weight: 800;
            }

            .stButton > button {
                border-radius: 12px;
                font-weight: 600;
            }
            .stButton > button[kind="primary"] {
                background: linear-gradient(135deg, #15803d 0%, #166534 100%);
                color: white;
                border: none;
            }

            .closed-card, .success-card {
                background: rgba(255, 255, 255, 0.96);
                border: 4px solid #facc15;
                border-radius: 24px;
                padding: 32px;
                text-align: center;
                margin-top: 24px;
            }
            .success-title {
                color: #b91c1c;
                font-family: 'Moul', serif;
                font-size: 32px;
            }

            .dashboard-header {
                background: #ffffff;
                border-radius: 16px;
                padding: 16px 24px;
                margin-bottom: 16px;
                border: 1px solid #e5e7eb;
            }
            .dashboard-title {
                font-family: 'Moul', serif;
                color: #1f2937;
                font-size: 22px;
                margin: 0;
            }
            .dashboard-subtitle {
                color: #6b7280;
                font-size: 13px;
            }
            </style>
            """
        ),
        unsafe_allow_html=True,
    )
