# domain -- storage interface and error taxonomy
