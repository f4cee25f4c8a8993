# frontend/api_client.py

import os
import time
from typing import Optional, Dict, Any, List, Callable
import requests

TERMINAL_STAGES = ("DONE", "FAILED")

class BackendClient:
    def __init__(self, base_url: Optional[str] = None, timeout: float = 30.0,
                 token: Optional[str] = None, client_id: Optional[str] = None):
        self.base_url = (base_url or os.getenv("BACKEND_URL") or "http://localhost:8000").rstrip("/")
        self.timeout = timeout
        self.token = token or os.getenv("BACKEND_TOKEN")
        self.client_id = client_id

    def _headers(self) -> Dict[str, str]:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self.client_id:
            headers["X-Client-Id"] = self.client_id
        return headers

    def _get(self, path: str, timeout: Optional[float] = None, **kwargs) -> requests.Response:
        resp = requests.get(f"{self.base_url}{path}", headers=self._headers(),
                            timeout=timeout or self.timeout, **kwargs)
        resp.raise_for_status()
        return resp

    # -------- Submission --------
    def submit_resume(self, file_bytes: bytes, filename: str, company_name: str,
                      job_title: str, job_description: str) -> Dict[str, str]:
        """Returns {"job_id", "resume_id"}."""
        files = {"file": (filename, file_bytes, "application/pdf")}
        data = {"company_name": company_name, "job_title": job_title, "job_description": job_description}
        resp = requests.post(f"{self.base_url}/resumes", files=files, data=data,
                             headers=self._headers(), timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def job_status(self, job_id: str) -> Dict[str, Any]:
        return self._get(f"/jobs/{job_id}").json()

    def follow_job(
        self,
        job_id: str,
        total_wait: float = 300.0,
        poll_interval: float = 1.5,
        on_tick: Optional[Callable[[float, Dict[str, Any]], None]] = None,
    ) -> Dict[str, Any]:
        """Poll the pipeline until it reaches DONE/FAILED or `total_wait` runs out."""
        elapsed = 0.0
        status: Dict[str, Any] = {"job_id": job_id, "stage": "IDLE", "status_message": ""}
        while elapsed < total_wait:
            try:
                status = self.job_status(job_id)
            except requests.RequestException as e:
                status = {"job_id": job_id, "stage": "UNKNOWN", "status_message": str(e)}
            if on_tick:
                on_tick(elapsed, status)
            if status.get("stage") in TERMINAL_STAGES:
                return status
            time.sleep(poll_interval)
            elapsed += poll_interval
        return status

    # -------- Read side --------
    def list_resumes(self) -> List[Dict[str, Any]]:
        return self._get("/resumes").json()

    def get_resume(self, resume_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self._get(f"/resumes/{resume_id}").json()
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                return None
            raise

    def wait_feedback(self, resume_id: str, timeout: float = 60.0) -> Dict[str, Any]:
        """{"state": READY|NOT_FOUND|TIMED_OUT, "message", "feedback"}"""
        return self._get(f"/resumes/{resume_id}/wait", params={"timeout": timeout},
                         timeout=timeout + 5).json()

    def resume_image(self, resume_id: str) -> Optional[bytes]:
        try:
            return self._get(f"/resumes/{resume_id}/image").content
        except requests.HTTPError:
            return None

    def download_url(self, resume_id: str, fmt: str = "pdf") -> str:
        return f"{self.base_url}/resumes/{resume_id}/download?format={fmt}"
