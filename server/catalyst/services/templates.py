"""Starter project templates offered to code generation."""

from catalyst.models.template import ProjectTemplate, TechStack

_NEXT_STACK = ["Next.js", "React", "Tailwind CSS", "TypeScript"]
_NODE_BACKEND = ["Node.js", "tRPC", "Express"]
_POSTGRES = ["PostgreSQL", "Drizzle ORM"]

TEMPLATES: list[ProjectTemplate] = [
    ProjectTemplate(
        id="saas-landing",
        name="SaaS Landing Page",
        description="Modern landing page with hero section, features, pricing tiers, and CTA",
        category="Marketing",
        tags=["landing", "saas", "marketing", "conversion"],
        icon="Layout",
        features=[
            "Responsive hero section with CTA",
            "Feature showcase grid",
            "Pricing table with tier comparison",
            "Testimonials section",
            "FAQ accordion",
            "Contact form",
            "SEO optimized",
        ],
        tech_stack=TechStack(frontend=_NEXT_STACK, other=["Framer Motion", "React Hook Form"]),
        estimated_time="2-3 minutes",
        complexity="beginner",
    ),
    ProjectTemplate(
        id="dashboard-app",
        name="Dashboard Application",
        description="Full-featured dashboard with authentication, data visualization, and CRUD operations",
        category="Application",
        tags=["dashboard", "admin", "analytics", "crud"],
        icon="LayoutDashboard",
        features=[
            "User authentication (email/password)",
            "Sidebar navigation",
            "Data tables with sorting/filtering",
            "Charts and visualizations",
            "CRUD operations",
            "User profile management",
            "Dark/light mode toggle",
        ],
        tech_stack=TechStack(
            frontend=[*_NEXT_STACK, "Recharts"], backend=_NODE_BACKEND, database=_POSTGRES,
        ),
        estimated_time="4-5 minutes",
        complexity="intermediate",
    ),
    ProjectTemplate(
        id="ecommerce-store",
        name="E-Commerce Store",
        description="Complete online store with product catalog, cart, and Stripe checkout",
        category="E-Commerce",
        tags=["ecommerce", "store", "shopping", "stripe"],
        icon="ShoppingCart",
        features=[
            "Product catalog with categories",
            "Product search and filtering",
            "Shopping cart functionality",
            "Stripe payment integration",
            "Order management",
            "User accounts and order history",
        ],
        tech_stack=TechStack(
            frontend=_NEXT_STACK, backend=_NODE_BACKEND, database=_POSTGRES, other=["Stripe"],
        ),
        estimated_time="5-7 minutes",
        complexity="advanced",
    ),
    ProjectTemplate(
        id="blog-cms",
        name="Blog & CMS",
        description="Content management system with markdown editor, categories, and comments",
        category="Content",
        tags=["blog", "cms", "content", "markdown"],
        icon="FileText",
        features=[
            "Markdown post editor",
            "Categories and tags",
            "Comment system",
            "Author profiles",
            "RSS feed",
            "SEO metadata per post",
        ],
        tech_stack=TechStack(frontend=_NEXT_STACK, backend=_NODE_BACKEND, database=_POSTGRES),
        estimated_time="4-5 minutes",
        complexity="intermediate",
    ),
    ProjectTemplate(
        id="portfolio-site",
        name="Portfolio Website",
        description="Personal portfolio with project showcase, about section, and contact form",
        category="Personal",
        tags=["portfolio", "personal", "showcase", "resume"],
        icon="User",
        features=[
            "Project gallery with filtering",
            "About and skills section",
            "Resume download",
            "Contact form",
            "Smooth scroll animations",
        ],
        tech_stack=TechStack(frontend=_NEXT_STACK, other=["Framer Motion"]),
        estimated_time="2-3 minutes",
        complexity="beginner",
    ),
    ProjectTemplate(
        id="api-backend",
        name="REST API Backend",
        description="Production-ready REST API with authentication, validation, and documentation",
        category="Backend",
        tags=["api", "rest", "backend", "server"],
        icon="Server",
        features=[
            "JWT authentication",
            "Request validation",
            "CRUD endpoints",
            "Error handling middleware",
            "OpenAPI documentation",
            "Rate limiting",
        ],
        tech_stack=TechStack(
            backend=["Node.js", "Express", "TypeScript"], database=_POSTGRES, other=["Swagger"],
        ),
        estimated_time="3-4 minutes",
        complexity="intermediate",
    ),
    ProjectTemplate(
        id="crypto-dashboard",
        name="Crypto Portfolio Tracker",
        description="Real-time cryptocurrency portfolio tracker with price charts and alerts",
        category="Finance",
        tags=["crypto", "finance", "portfolio", "realtime"],
        icon="TrendingUp",
        features=[
            "Live price tracking",
            "Portfolio holdings and P&L",
            "Historical price charts",
            "Price alerts",
            "Watchlist",
        ],
        tech_stack=TechStack(
            frontend=[*_NEXT_STACK, "Recharts"],
            backend=_NODE_BACKEND,
            database=_POSTGRES,
            other=["CoinGecko API", "WebSocket"],
        ),
        estimated_time="5-6 minutes",
        complexity="advanced",
    ),
    ProjectTemplate(
        id="todo-app",
        name="Todo & Task Manager",
        description="Feature-rich task management app with categories, priorities, and due dates",
        category="Productivity",
        tags=["todo", "tasks", "productivity", "organization"],
        icon="CheckSquare",
        features=[
            "Create, edit, delete tasks",
            "Task categories and labels",
            "Priority levels",
            "Due dates and reminders",
            "Task filtering and search",
            "Completion tracking",
            "Dark/light mode",
        ],
        tech_stack=TechStack(frontend=_NEXT_STACK, backend=_NODE_BACKEND, database=_POSTGRES),
        estimated_time="3-4 minutes",
        complexity="beginner",
    ),
]


def get_template_by_id(template_id: str) -> ProjectTemplate | None:
    for template in TEMPLATES:
        if template.id == template_id:
            return template
    return None


def get_templates_by_category(category: str) -> list[ProjectTemplate]:
    return [t for t in TEMPLATES if t.category == category]


def get_all_categories() -> list[str]:
    # dict keeps first-seen order
    return list(dict.fromkeys(t.category for t in TEMPLATES))
