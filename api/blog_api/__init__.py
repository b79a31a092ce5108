"""Blog API: posts, comments and role-gated authoring."""

from dotenv import load_dotenv

# Read .env before any module looks at the environment
load_dotenv()
