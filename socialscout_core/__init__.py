"""SocialScout Core: social media contact scraping service."""
