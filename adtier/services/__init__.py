# Services - Graph API sync pipeline and ad analysis
