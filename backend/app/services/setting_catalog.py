"""Default admin settings catalogue.

Group metadata drives the order and headings of the settings page; the
definitions are upserted by ``SettingsService.initialize_defaults`` and their
``value`` is what ``SettingsService.reset_all`` restores.
"""

from __future__ import annotations

from typing import Any

DEFAULT_MAINTENANCE_MESSAGE = (
    "Estamos realizando mejoras en nuestro sitio. Volveremos pronto."
)

SETTING_GROUPS: dict[str, dict[str, str]] = {
    "general": {
        "label": "General Settings",
        "description": "Essential website settings",
        "icon": "settings",
    },
    "company": {
        "label": "Company Information",
        "description": "Contact details and corporate information",
        "icon": "business",
    },
    "email": {
        "label": "Email Settings",
        "description": "Email and notification configuration",
        "icon": "email",
    },
    "security": {
        "label": "Seguridad",
        "description": "Security and authentication settings",
        "icon": "security",
    },
    "api": {
        "label": "APIs and Integrations",
        "description": "API keys and external service configurations",
        "icon": "api",
    },
    "ml": {
        "label": "Machine Learning",
        "description": "AI and recommendation system configuration",
        "icon": "psychology",
    },
    "social": {
        "label": "Social Media",
        "description": "Enlaces y configuraciones de Social Media",
        "icon": "share",
    },
    "seo": {
        "label": "SEO and Meta Tags",
        "description": "Search engine optimization settings",
        "icon": "search",
    },
    "maintenance": {
        "label": "Maintenance",
        "description": "Maintenance and development mode settings",
        "icon": "build",
    },
    "backup": {
        "label": "Backup",
        "description": "Backup and restore configuration",
        "icon": "storage",
    },
    "performance": {
        "label": "Performance",
        "description": "Cache and optimization settings",
        "icon": "performance",
    },
    "blog": {
        "label": "Blog",
        "description": "Blog configuration and display settings",
        "icon": "article",
    },
}


def _setting(
    key: str,
    value: Any,
    type: str,
    group: str,
    label: str,
    description: str,
    rules: list[str],
    sort_order: int,
    is_public: bool = False,
    options: Any = None,
    is_encrypted: bool = False,
) -> dict[str, Any]:
    return {
        "key": key,
        "value": value,
        "type": type,
        "group": group,
        "label": label,
        "description": description,
        "validation_rules": rules,
        "options": options,
        "is_public": is_public,
        "is_encrypted": is_encrypted,
        "sort_order": sort_order,
    }


DEFAULT_SETTINGS: list[dict[str, Any]] = [
    # General
    _setting("site_name", "MDR Construcciones", "string", "general", "Site Name",
             "Primary name of the website", ["required", "string", "max:255"], 1, is_public=True),
    _setting("site_description", "Empresa líder en construcción y reformas en Madrid.",
             "text", "general", "Site Description", "Short description of the website",
             ["required", "string", "max:500"], 2, is_public=True),
    _setting("site_logo", "/images/logo.png", "file", "general", "Site Logo",
             "Primary logo", ["nullable", "string", "max:255"], 3, is_public=True,
             options={"accept": "image/png,image/jpeg,image/svg+xml", "maxSize": 2048}),
    _setting("site_favicon", "/favicon.ico", "file", "general", "Favicon",
             "Icono del sitio", ["nullable", "string", "max:255"], 4, is_public=True,
             options={"accept": "image/x-icon,image/png", "maxSize": 512}),
    _setting("site_tagline", "Construcción de Calidad Premium", "string", "general",
             "Site Tagline", "Slogan o frase descriptiva del sitio",
             ["nullable", "string", "max:255"], 5, is_public=True),
    _setting("timezone", "Europe/Madrid", "select", "general", "Timezone",
             "Zona horaria del sitio", ["required", "string", "timezone"], 6,
             options={"Europe/Madrid": "Madrid", "Europe/London": "London", "UTC": "UTC"}),
    _setting("date_format", "d/m/Y", "select", "general", "Date Format",
             "Formato de fecha para mostrar", ["required", "string", "in:d/m/Y,m/d/Y,Y-m-d"], 7,
             options={"d/m/Y": "31/12/2025", "m/d/Y": "12/31/2025", "Y-m-d": "2025-12-31"}),
    _setting("time_format", "H:i", "select", "general", "Time Format",
             "Formato de hora para mostrar", ["required", "string", "in:H:i,h:i A"], 8,
             options={"H:i": "24h", "h:i A": "12h"}),

    # Company
    _setting("company_name", "MDR Construcciones", "string", "company", "Company Name",
             "Official company name", ["required", "string", "max:255"], 1, is_public=True),
    _setting("company_phone", "+34 123 456 789", "string", "company", "Phone",
             "Primary phone number", ["required", "string", "max:20"], 2, is_public=True),
    _setting("company_email", "info@mdrconstrucciones.com", "email", "company",
             "Email de Contacto", "Email principal de contacto",
             ["required", "email", "max:255"], 3, is_public=True),
    _setting("company_address", "Calle Principal 123, 28001 Madrid", "text", "company",
             "Address", "Company physical address", ["required", "string", "max:500"], 4,
             is_public=True),

    # Email
    _setting("mail_from_name", "MDR Construcciones", "string", "email",
             "Nombre del Remitente", "Nombre que aparece en los emails enviados",
             ["required", "string", "max:255"], 1),
    _setting("mail_from_address", "noreply@mdrconstrucciones.com", "email", "email",
             "Email del Remitente", "Email que aparece como remitente",
             ["required", "email", "max:255"], 2),
    _setting("enable_email_notifications", True, "boolean", "email",
             "Enable Email Notifications", "Habilitar notificaciones por email", ["boolean"], 3),
    _setting("email_template", "default", "select", "email", "Email Template",
             "Plantilla para emails del sistema",
             ["required", "string", "in:default,modern,minimal"], 4,
             options={"default": "Default", "modern": "Modern", "minimal": "Minimal"}),

    # Security
    _setting("session_timeout", 120, "integer", "security", "Session Time (minutes)",
             "Time before the session expires", ["required", "integer", "min:5", "max:1440"], 1),
    _setting("max_login_attempts", 5, "integer", "security", "Maximum Login Attempts",
             "Maximum number of failed login attempts",
             ["required", "integer", "min:3", "max:10"], 2),
    _setting("lockout_duration", 15, "integer", "security", "Lockout Duration (minutes)",
             "Tiempo de bloqueo después de exceder intentos de login",
             ["required", "integer", "min:1", "max:1440"], 3),
    _setting("password_min_length", 8, "integer", "security", "Password Min Length",
             "Longitud mínima de contraseña", ["required", "integer", "min:6", "max:32"], 4),
    _setting("password_require_special", True, "boolean", "security",
             "Require Special Characters", "Requerir caracteres especiales en contraseñas",
             ["boolean"], 5),
    _setting("enable_captcha", False, "boolean", "security", "Enable CAPTCHA",
             "Habilitar CAPTCHA en formularios de registro y login", ["boolean"], 6),
    _setting("enable_2fa", False, "boolean", "security", "Enable 2FA",
             "Habilitar autenticación de dos factores", ["boolean"], 7),
    _setting("allowed_upload_extensions", "jpg,jpeg,png,gif,svg,ico,pdf,doc,docx", "text",
             "security", "Allowed Upload Extensions",
             "Extensiones de archivo permitidas (separadas por comas)",
             ["required", "string", "max:500"], 8),
    _setting("max_upload_size", 10240, "integer", "security", "Max Upload Size (KB)",
             "Tamaño máximo de archivo para subir en KB",
             ["required", "integer", "min:1024", "max:102400"], 9),

    # Social
    _setting("facebook_url", "", "url", "social", "Facebook", "Página de Facebook",
             ["nullable", "url", "max:255"], 1, is_public=True),
    _setting("instagram_url", "", "url", "social", "Instagram", "Perfil de Instagram",
             ["nullable", "url", "max:255"], 2, is_public=True),
    _setting("linkedin_url", "", "url", "social", "LinkedIn", "Página de LinkedIn",
             ["nullable", "url", "max:255"], 3, is_public=True),
    _setting("twitter_url", "", "url", "social", "Twitter", "Perfil de Twitter",
             ["nullable", "url", "max:255"], 4, is_public=True),

    # SEO
    _setting("meta_description",
             "MDR Construcciones - Empresa líder en construcción y reformas en Madrid.",
             "text", "seo", "Meta Description", "Descripción para buscadores",
             ["required", "string", "max:160"], 1, is_public=True),
    _setting("meta_keywords", "construcción, reformas, Madrid, obras", "text", "seo",
             "Meta Keywords", "Palabras clave", ["nullable", "string", "max:255"], 2,
             is_public=True),
    _setting("google_analytics_id", "", "string", "seo", "Google Analytics ID",
             "Identificador de medición", ["nullable", "string", "max:50"], 3),
    _setting("enable_sitemap", True, "boolean", "seo", "Enable Sitemap",
             "Generar sitemap.xml", ["boolean"], 4, is_public=True),

    # Maintenance
    _setting("maintenance_mode", False, "boolean", "maintenance", "Maintenance Mode",
             "Enable maintenance mode for the site", ["boolean"], 1),
    _setting("maintenance_message", DEFAULT_MAINTENANCE_MESSAGE, "text", "maintenance",
             "Mensaje de Mantenimiento",
             "Mensaje personalizado que verán los usuarios durante mantenimiento",
             ["required_if:maintenance_mode,true", "string", "max:1000"], 2),
    _setting("maintenance_allowed_ips", [], "json", "maintenance", "IPs Permitidas",
             "Lista de IPs permitidas para acceder durante mantenimiento (whitelist)",
             ["nullable", "array"], 3),
    _setting("maintenance_start_at", None, "datetime", "maintenance", "Inicio Programado",
             "Fecha y hora de inicio programado del mantenimiento",
             ["nullable", "date", "after:now"], 4),
    _setting("maintenance_end_at", None, "datetime", "maintenance", "Fin Programado",
             "Fecha y hora de fin programado del mantenimiento",
             ["nullable", "date", "after:maintenance_start_at"], 5),
    _setting("maintenance_show_countdown", True, "boolean", "maintenance",
             "Mostrar Cuenta Regresiva",
             "Mostrar cuenta regresiva hasta el fin del mantenimiento", ["boolean"], 6),
    _setting("maintenance_allow_admin", True, "boolean", "maintenance",
             "Permitir Acceso Admin",
             "Permitir acceso a administradores durante mantenimiento", ["boolean"], 7),
    _setting("maintenance_retry_after", 3600, "integer", "maintenance",
             "Retry-After (segundos)", "Tiempo en segundos para header Retry-After (SEO)",
             ["nullable", "integer", "min:60", "max:86400"], 8),
    _setting("maintenance_secret", None, "password", "maintenance", "Secret de Bypass",
             "Token secreto para acceder durante mantenimiento (?secret=TOKEN)",
             ["nullable", "string", "min:8", "max:255"], 9, is_encrypted=True),
    _setting("maintenance_template", "default", "select", "maintenance",
             "Plantilla de Mantenimiento", "Plantilla visual para la página de mantenimiento",
             ["required", "string", "in:default,minimal,modern"], 10,
             options={"default": "Default", "minimal": "Minimal", "modern": "Modern"}),

    # Backup
    _setting("backup_enabled", True, "boolean", "backup", "Enable Backups",
             "Habilitar backups automáticos", ["boolean"], 1),
    _setting("backup_frequency", "daily", "select", "backup", "Backup Frequency",
             "Frecuencia de backups automáticos",
             ["required", "string", "in:hourly,daily,weekly,monthly"], 2,
             options={"hourly": "Hourly", "daily": "Daily", "weekly": "Weekly",
                      "monthly": "Monthly"}),
    _setting("backup_retention", 30, "integer", "backup", "Backup Retention (days)",
             "Días de retención de backups", ["required", "integer", "min:1", "max:365"], 3),
    _setting("backup_notification_email", "admin@mdrconstrucciones.com", "email", "backup",
             "Backup Notification Email", "Email para notificaciones de backup",
             ["required", "email", "max:255"], 4),

    # Performance
    _setting("enable_asset_compression", True, "boolean", "performance",
             "Enable Asset Compression", "Comprimir CSS y JS", ["boolean"], 1),
    _setting("enable_lazy_loading", True, "boolean", "performance", "Enable Lazy Loading",
             "Carga diferida de imágenes", ["boolean"], 2, is_public=True),
    _setting("cache_ttl", 3600, "integer", "performance", "Cache TTL (seconds)",
             "Tiempo de vida del cache en segundos",
             ["required", "integer", "min:60", "max:86400"], 3),

    # Blog
    _setting("blog_enabled", True, "boolean", "blog", "Blog Enabled",
             "Mostrar el blog en el sitio", ["boolean"], 1, is_public=True),
    _setting("blog_posts_per_page", 12, "integer", "blog", "Posts per Page",
             "Número de artículos por página", ["integer", "min:1", "max:50"], 2,
             is_public=True),
    _setting("blog_allow_comments", True, "boolean", "blog", "Allow Comments",
             "Permitir comentarios en artículos", ["boolean"], 3, is_public=True),
    _setting("blog_moderate_comments", True, "boolean", "blog", "Moderate Comments",
             "Los comentarios requieren aprobación", ["boolean"], 4),
]


def default_values() -> dict[str, Any]:
    """Map each catalogue key to its default value."""
    return {entry["key"]: entry["value"] for entry in DEFAULT_SETTINGS}
