# frontend/streamlit_app.py

import os
import uuid
import requests
import streamlit as st

from api_client import BackendClient
from accordion import AccordionController, AccordionMode
from backend.app.core.feedback import ats_tier, badge_tier, criteria_color, format_size, score_tier
from backend.app.models.feedback import DETAIL_SECTIONS

st.set_page_config(page_title="Resume Review", layout="wide")

BACKEND_URL = os.getenv("BACKEND_URL", "http://localhost:8000")
FEEDBACK_WAIT_SECONDS = float(os.getenv("FEEDBACK_WAIT_SECONDS", "60"))

# ---------- Session state ----------
if "client_id" not in st.session_state:
    st.session_state.client_id = uuid.uuid4().hex
if "accordion" not in st.session_state:
    st.session_state.accordion = AccordionController(mode=AccordionMode.SINGLE)
if "resume_id" not in st.session_state:
    st.session_state.resume_id = None

client = BackendClient(base_url=BACKEND_URL, client_id=st.session_state.client_id)

_TIER_ICONS = {"green": "🟢", "yellow": "🟡", "red": "🔴"}

def _tip_icon(tip_type: str) -> str:
    return "✅" if tip_type == "good" else "⚠️"

def _error_detail(e: requests.HTTPError) -> str:
    try:
        return str(e.response.json().get("detail"))
    except (ValueError, AttributeError):
        return str(e)

# ---------- Feedback rendering ----------

def render_summary(feedback: dict):
    st.subheader("Your Score")
    overall = feedback["overallScore"]
    st.progress(overall / 100, text=f"{overall}/100 · {score_tier(overall)}")
    st.caption("This score is based on the following criteria:")
    cols = st.columns(len(DETAIL_SECTIONS))
    for col, (key, title) in zip(cols, DETAIL_SECTIONS):
        score = feedback[key]["score"]
        with col:
            st.metric(title, f"{score}/100")
            st.write(f"{_TIER_ICONS[criteria_color(score)]} {score_tier(score)}")

def render_ats(ats: dict):
    score = ats.get("score") or 0
    with st.container(border=True):
        st.markdown(f"### {_TIER_ICONS[ats_tier(score)]} ATS Score - {score}/100")
        st.write("How well does your resume pass through Applicant Tracking Systems?")
        st.caption("Your resume was scanned like an employer would. Here's how it performed:")
        for tip in ats.get("tips", []):
            st.write(f"{_tip_icon(tip['type'])} {tip['tip']}")
        st.caption("Want a better score? Improve your resume by applying the suggestions listed below.")

def render_details(feedback: dict, accordion: AccordionController):
    for key, title in DETAIL_SECTIONS:
        section = feedback[key]
        is_open = accordion.is_open(key)
        label = f"{'▾' if is_open else '▸'} {title}   {_TIER_ICONS[badge_tier(section['score'])]} {section['score']}/100"
        st.button(label, key=f"acc-{key}", on_click=accordion.toggle, args=(key,), use_container_width=True)
        if is_open:
            for tip in section.get("tips", []):
                with st.container(border=True):
                    st.markdown(f"**{_tip_icon(tip['type'])} {tip['tip']}**")
                    st.write(tip.get("explanation", ""))

def render_review(resume_id: str):
    record = client.get_resume(resume_id)
    if record is None:
        st.error("Resume not found")
        return

    left, right = st.columns([2, 3])
    with left:
        image = client.resume_image(resume_id)
        if image:
            st.image(image, caption=f"{record.get('jobTitle', '')} · {record.get('companyName', '')}")
    with right:
        st.header("Resume Review")
        with st.spinner("Waiting for feedback..."):
            result = client.wait_feedback(resume_id, timeout=FEEDBACK_WAIT_SECONDS)
        state = result.get("state")
        if state == "READY":
            feedback = result["feedback"]
            render_summary(feedback)
            render_ats(feedback["ATS"])
            render_details(feedback, st.session_state.accordion)
            st.link_button("⬇️ Download report (PDF)", client.download_url(resume_id, "pdf"))
        elif state == "NOT_FOUND":
            st.error(result.get("message") or "Resume not found")
        else:
            st.warning(result.get("message") or "No feedback available")

# ---------- Upload ----------

def run_upload(uploaded, company_name: str, job_title: str, job_description: str):
    status_box = st.empty()
    try:
        submitted = client.submit_resume(uploaded.getvalue(), uploaded.name, company_name, job_title, job_description)
    except requests.HTTPError as e:
        st.error(f"Could not submit resume: {_error_detail(e)}")
        return

    def on_tick(elapsed, status):
        status_box.info(status.get("status_message") or "Waiting for the worker...")

    with st.spinner("Analyzing resume..."):
        status = client.follow_job(submitted["job_id"], on_tick=on_tick)

    if status.get("stage") == "DONE":
        status_box.success(status.get("status_message"))
        st.session_state.resume_id = submitted["resume_id"]
        st.session_state.accordion = AccordionController(mode=AccordionMode.SINGLE)
    else:
        status_box.error(status.get("status_message") or "Failed to analyze resume. Please try again.")

st.title("Smart feedback for your dream job")

with st.sidebar:
    st.subheader("📜 Your resumes")
    try:
        history = client.list_resumes()
    except requests.RequestException as e:
        history = []
        st.caption(f"History unavailable: {e}")
    for item in history:
        score = item.get("overallScore")
        label = f"{item.get('jobTitle') or 'Resume'} @ {item.get('companyName') or '-'}"
        label += f" · {score}/100" if score is not None else " · processing"
        if st.button(label, key=f"hist-{item['id']}", use_container_width=True):
            st.session_state.resume_id = item["id"]
            st.session_state.accordion = AccordionController(mode=AccordionMode.SINGLE)

if st.session_state.resume_id:
    if st.button("⬅️ Upload another resume"):
        st.session_state.resume_id = None
        st.rerun()
    render_review(st.session_state.resume_id)
else:
    st.subheader("Upload your resume for improvement tips and an ATS score")
    with st.form("upload-form"):
        company_name = st.text_input("Company Name")
        job_title = st.text_input("Job Title")
        job_description = st.text_area("Job Description", height=150)
        uploaded = st.file_uploader("Upload your Resume", type=["pdf"])
        if uploaded is not None:
            st.caption(f"{uploaded.name} · {format_size(uploaded.size)}")
        submitted = st.form_submit_button("Analyse Resume")

    if submitted:
        if not (company_name.strip() and job_title.strip() and job_description.strip() and uploaded):
            st.error("Please fill in every field and choose a PDF resume.")
        else:
            run_upload(uploaded, company_name, job_title, job_description)
            if st.session_state.resume_id:
                st.rerun()
