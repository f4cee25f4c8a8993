# backend/app/core/prompts.py

RESPONSE_FORMAT = """
interface Feedback {
  overallScore: number; // max 100
  ATS: {
    score: number; // rate based on ATS suitability
    tips: {
      type: "good" | "improve";
      tip: string; // give 3-4 tips
    }[];
  };
  toneAndStyle: {
    score: number; // max 100
    tips: {
      type: "good" | "improve";
      tip: string; // make it a short "title" for the actual explanation
      explanation: string; // explain in detail here
    }[]; // give 3-4 tips
  };
  content: {
    score: number; // max 100
    tips: { type: "good" | "improve"; tip: string; explanation: string }[]; // give 3-4 tips
  };
  structure: {
    score: number; // max 100
    tips: { type: "good" | "improve"; tip: string; explanation: string }[]; // give 3-4 tips
  };
  skills: {
    score: number; // max 100
    tips: { type: "good" | "improve"; tip: string; explanation: string }[]; // give 3-4 tips
  };
}
""".strip()

SYSTEM_PROMPT = "You are an expert in ATS (Applicant Tracking System) and resume analysis. Output JSON only."

INSTRUCTIONS_TEMPLATE = """You are an expert in ATS (Applicant Tracking System) and resume analysis.
Please analyze and rate this resume and suggest how to improve it.
The rating can be low if the resume is bad.
Be thorough and detailed. Don't be afraid to point out any mistakes or areas for improvement.
If there is a lot to improve, don't hesitate to give low scores. This is to help the user to improve their resume.
If available, use the job description for the job user is applying to to give more detailed feedback.
If provided, take the job description into consideration.
The company is: {company_name}
The job title is: {job_title}
The job description is: {job_description}
Provide the feedback using the following format:
{response_format}
Return the analysis as a JSON object, without any other text and without the backticks.
Do not include any other text or comments."""


def prepare_instructions(job_title: str, job_description: str, company_name: str = "") -> str:
    return INSTRUCTIONS_TEMPLATE.format(
        company_name=company_name.strip() or "not specified",
        job_title=job_title.strip(),
        job_description=job_description.strip(),
        response_format=RESPONSE_FORMAT,
    )
