#------------------------------------------------------------
#                    tech_stack_service.py
#       Detects frameworks and libraries from dependency
#                manifests found in repositories.

import json
import logging
import re
from typing import Callable, Dict, Iterable, List, Optional
from ..errors import MalformedManifestError
from ..models import TechnologyRecord

logger = logging.getLogger(__name__)

NPM_DEPENDENCY_PATTERNS = {
    # Frontend frameworks
    "react": ("React", "Frontend Frameworks"),
    "react-dom": ("React", "Frontend Frameworks"),
    "vue": ("Vue.js", "Frontend Frameworks"),
    "@angular/core": ("Angular", "Frontend Frameworks"),
    "svelte": ("Svelte", "Frontend Frameworks"),
    "solid-js": ("Solid.js", "Frontend Frameworks"),
    "preact": ("Preact", "Frontend Frameworks"),
    # Meta frameworks
    "next": ("Next.js", "Meta Frameworks"),
    "nuxt": ("Nuxt.js", "Meta Frameworks"),
    "gatsby": ("Gatsby", "Meta Frameworks"),
    "remix": ("Remix", "Meta Frameworks"),
    "astro": ("Astro", "Meta Frameworks"),
    # Backend frameworks
    "express": ("Express.js", "Backend Frameworks"),
    "fastify": ("Fastify", "Backend Frameworks"),
    "koa": ("Koa", "Backend Frameworks"),
    "hapi": ("Hapi", "Backend Frameworks"),
    "nestjs": ("NestJS", "Backend Frameworks"),
    "@nestjs/core": ("NestJS", "Backend Frameworks"),
    # State management
    "redux": ("Redux", "State Management"),
    "@reduxjs/toolkit": ("Redux Toolkit", "State Management"),
    "mobx": ("MobX", "State Management"),
    "zustand": ("Zustand", "State Management"),
    "recoil": ("Recoil", "State Management"),
    "jotai": ("Jotai", "State Management"),
    "pinia": ("Pinia", "State Management"),
    "vuex": ("Vuex", "State Management"),
    # Styling
    "tailwindcss": ("Tailwind CSS", "CSS Frameworks"),
    "styled-components": ("Styled Components", "CSS-in-JS"),
    "@emotion/react": ("Emotion", "CSS-in-JS"),
    "sass": ("Sass", "CSS Preprocessors"),
    "less": ("Less", "CSS Preprocessors"),
    "bootstrap": ("Bootstrap", "CSS Frameworks"),
    "@mui/material": ("Material UI", "UI Libraries"),
    "antd": ("Ant Design", "UI Libraries"),
    "chakra-ui": ("Chakra UI", "UI Libraries"),
    "@chakra-ui/react": ("Chakra UI", "UI Libraries"),
    # Testing
    "jest": ("Jest", "Testing"),
    "mocha": ("Mocha", "Testing"),
    "vitest": ("Vitest", "Testing"),
    "cypress": ("Cypress", "E2E Testing"),
    "playwright": ("Playwright", "E2E Testing"),
    "@testing-library/react": ("React Testing Library", "Testing"),
    # Databases and ORMs
    "mongoose": ("MongoDB/Mongoose", "Databases"),
    "prisma": ("Prisma", "ORMs"),
    "@prisma/client": ("Prisma", "ORMs"),
    "typeorm": ("TypeORM", "ORMs"),
    "sequelize": ("Sequelize", "ORMs"),
    "drizzle-orm": ("Drizzle", "ORMs"),
    "pg": ("PostgreSQL", "Databases"),
    "mysql2": ("MySQL", "Databases"),
    "redis": ("Redis", "Databases"),
    "ioredis": ("Redis", "Databases"),
    # GraphQL
    "graphql": ("GraphQL", "API"),
    "apollo-server": ("Apollo Server", "API"),
    "@apollo/client": ("Apollo Client", "API"),
    "urql": ("URQL", "API"),
    # Auth
    "passport": ("Passport.js", "Authentication"),
    "jsonwebtoken": ("JWT", "Authentication"),
    "next-auth": ("NextAuth.js", "Authentication"),
    "@auth/core": ("Auth.js", "Authentication"),
    # Utilities
    "axios": ("Axios", "HTTP Clients"),
    "lodash": ("Lodash", "Utilities"),
    "date-fns": ("date-fns", "Utilities"),
    "dayjs": ("Day.js", "Utilities"),
    "moment": ("Moment.js", "Utilities"),
    "zod": ("Zod", "Validation"),
    "yup": ("Yup", "Validation"),
    # Build tools
    "webpack": ("Webpack", "Build Tools"),
    "vite": ("Vite", "Build Tools"),
    "esbuild": ("esbuild", "Build Tools"),
    "rollup": ("Rollup", "Build Tools"),
    "parcel": ("Parcel", "Build Tools"),
    "turbo": ("Turborepo", "Build Tools"),
    # Mobile
    "react-native": ("React Native", "Mobile Development"),
    "expo": ("Expo", "Mobile Development"),
    "@capacitor/core": ("Capacitor", "Mobile Development"),
    "cordova": ("Cordova", "Mobile Development"),
    # AI/ML
    "openai": ("OpenAI", "AI/ML"),
    "langchain": ("LangChain", "AI/ML"),
    "@tensorflow/tfjs": ("TensorFlow.js", "AI/ML"),
}

PYTHON_PACKAGE_PATTERNS = {
    "django": ("Django", "Web Frameworks"),
    "flask": ("Flask", "Web Frameworks"),
    "fastapi": ("FastAPI", "Web Frameworks"),
    "tornado": ("Tornado", "Web Frameworks"),
    "pyramid": ("Pyramid", "Web Frameworks"),
    "aiohttp": ("aiohttp", "Web Frameworks"),
    "numpy": ("NumPy", "Data Science"),
    "pandas": ("Pandas", "Data Science"),
    "scipy": ("SciPy", "Data Science"),
    "matplotlib": ("Matplotlib", "Data Visualization"),
    "seaborn": ("Seaborn", "Data Visualization"),
    "plotly": ("Plotly", "Data Visualization"),
    "tensorflow": ("TensorFlow", "Machine Learning"),
    "keras": ("Keras", "Machine Learning"),
    "pytorch": ("PyTorch", "Machine Learning"),
    "torch": ("PyTorch", "Machine Learning"),
    "scikit-learn": ("Scikit-learn", "Machine Learning"),
    "sklearn": ("Scikit-learn", "Machine Learning"),
    "xgboost": ("XGBoost", "Machine Learning"),
    "lightgbm": ("LightGBM", "Machine Learning"),
    "transformers": ("Hugging Face Transformers", "NLP/AI"),
    "langchain": ("LangChain", "AI/ML"),
    "openai": ("OpenAI", "AI/ML"),
    "sqlalchemy": ("SQLAlchemy", "ORMs"),
    "peewee": ("Peewee", "ORMs"),
    "tortoise-orm": ("Tortoise ORM", "ORMs"),
    "celery": ("Celery", "Task Queues"),
    "redis": ("Redis", "Databases"),
    "psycopg2": ("PostgreSQL", "Databases"),
    "pymongo": ("MongoDB", "Databases"),
    "pytest": ("Pytest", "Testing"),
    "unittest": ("unittest", "Testing"),
    "requests": ("Requests", "HTTP Clients"),
    "httpx": ("HTTPX", "HTTP Clients"),
    "beautifulsoup4": ("BeautifulSoup", "Web Scraping"),
    "scrapy": ("Scrapy", "Web Scraping"),
    "selenium": ("Selenium", "Automation"),
    "pydantic": ("Pydantic", "Validation"),
    "marshmallow": ("Marshmallow", "Serialization"),
}

NPM_DEPENDENCY_SECTIONS = ("dependencies", "devDependencies", "peerDependencies")
TYPESCRIPT_PACKAGE = "typescript"
TYPESCRIPT_RECORD = ("TypeScript", "Languages")

VERSION_PREFIX_PATTERN = re.compile(r"^[\^~]+")
REQUIREMENT_NAME_PATTERN = re.compile(r"^([a-zA-Z0-9_-]+)")
REQUIREMENT_VERSION_PATTERN = re.compile(r"[=<>~]=?(.+)$")
PYPROJECT_DEPENDENCIES_PATTERN = re.compile(r"dependencies\s*=\s*\[([\s\S]*?)\]")

PACKAGE_JSON_SOURCE = "package.json"
REQUIREMENTS_SOURCE = "requirements.txt"
PYPROJECT_SOURCE = "pyproject.toml"

def _strip_version_prefix(version) -> Optional[str]:
    if not isinstance(version, str):
        return None
    return VERSION_PREFIX_PATTERN.sub("", version.strip()) or None

def _load_package_json(content: str) -> Dict[str, object]:
    try:
        data = json.loads(content)
    except ValueError as exc:
        raise MalformedManifestError(f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedManifestError("top-level value is not an object")

    declared: Dict[str, object] = {}
    for section in NPM_DEPENDENCY_SECTIONS:
        deps = data.get(section) or {}
        if not isinstance(deps, dict):
            raise MalformedManifestError(f"{section} is not an object")
        declared.update(deps)
    return declared

# This function does detect technologies declared in package.json.
# Malformed manifests yield an empty list instead of an error.
def analyze_package_json(content: str) -> List[TechnologyRecord]:
    try:
        declared = _load_package_json(content or "")
    except MalformedManifestError as exc:
        logger.debug("Skipping malformed package.json: %s", exc)
        return []

    technologies: List[TechnologyRecord] = []
    seen = set()
    for dependency, version in declared.items():
        match = NPM_DEPENDENCY_PATTERNS.get(dependency)
        if not match or match[0] in seen:
            continue
        seen.add(match[0])
        technologies.append(
            TechnologyRecord(
                name=match[0],
                category=match[1],
                version=_strip_version_prefix(version),
                source=PACKAGE_JSON_SOURCE,
            )
        )

    if TYPESCRIPT_PACKAGE in declared and TYPESCRIPT_RECORD[0] not in seen:
        technologies.append(
            TechnologyRecord(
                name=TYPESCRIPT_RECORD[0],
                category=TYPESCRIPT_RECORD[1],
                version=_strip_version_prefix(declared[TYPESCRIPT_PACKAGE]),
                source=PACKAGE_JSON_SOURCE,
            )
        )
    return technologies

# This function does detect technologies listed in requirements.txt.
# It reads the leading package token and any pinned version per line.
def analyze_requirements_txt(content: str) -> List[TechnologyRecord]:
    technologies: List[TechnologyRecord] = []
    seen = set()

    for line in (content or "").splitlines():
        requirement = line.split("#", 1)[0].strip()
        if not requirement:
            continue

        name_match = REQUIREMENT_NAME_PATTERN.match(requirement)
        if not name_match:
            continue
        match = PYTHON_PACKAGE_PATTERNS.get(name_match.group(1).lower())
        if not match or match[0] in seen:
            continue
        seen.add(match[0])

        version_match = REQUIREMENT_VERSION_PATTERN.search(requirement)
        technologies.append(
            TechnologyRecord(
                name=match[0],
                category=match[1],
                version=version_match.group(1).strip() if version_match else None,
                source=REQUIREMENTS_SOURCE,
            )
        )
    return technologies

# This function does detect technologies inside a pyproject dependencies block.
# It matches known package names as substrings rather than parsing TOML.
def analyze_pyproject_toml(content: str) -> List[TechnologyRecord]:
    block_match = PYPROJECT_DEPENDENCIES_PATTERN.search(content or "")
    if not block_match:
        return []

    block = block_match.group(1).lower()
    technologies: List[TechnologyRecord] = []
    seen = set()
    for package, (name, category) in PYTHON_PACKAGE_PATTERNS.items():
        if package in block and name not in seen:
            seen.add(name)
            technologies.append(TechnologyRecord(name=name, category=category, source=PYPROJECT_SOURCE))
    return technologies

MANIFEST_PARSERS: Dict[str, Callable[[str], List[TechnologyRecord]]] = {
    PACKAGE_JSON_SOURCE: analyze_package_json,
    REQUIREMENTS_SOURCE: analyze_requirements_txt,
    PYPROJECT_SOURCE: analyze_pyproject_toml,
}

def analyze_manifest(filename: str, content: str) -> List[TechnologyRecord]:
    parser = MANIFEST_PARSERS.get(filename)
    if parser is None:
        return []
    return parser(content)

# This function does group technology records by category.
# Records repeating a name already present in the category are dropped.
def categorize_technologies(technologies: Iterable[TechnologyRecord]) -> Dict[str, List[TechnologyRecord]]:
    categories: Dict[str, List[TechnologyRecord]] = {}
    seen = set()
    for tech in technologies:
        key = (tech.category, tech.name)
        if key in seen:
            continue
        seen.add(key)
        categories.setdefault(tech.category, []).append(tech)
    return categories
