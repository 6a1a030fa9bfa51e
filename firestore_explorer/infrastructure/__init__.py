"""Infrastructure: Firestore REST client, value codec and credentials."""
