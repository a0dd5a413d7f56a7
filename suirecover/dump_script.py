# Pasted into the extension's DevTools console (right click > Inspect > Console).
# Dumps every object store of the "keyval-store" IndexedDB to keyval-store-dump.json,
# which is the {"keyval": [{key, value}, ...]} layout schemas.py reads.

DUMP_FILENAME = "keyval-store-dump.json"

DB_DUMP_SCRIPT = """async function dumpKeyvalStore() {
  return new Promise((resolve, reject) => {
    const request = indexedDB.open("keyval-store");

    request.onerror = (event) => {
      reject(`Database error: ${request.error}`);
    };

    request.onsuccess = (event) => {
      const db = request.result;
      const storeNames = Array.from(db.objectStoreNames);
      const data = {};

      if (storeNames.length === 0) {
        resolve({ message: "No object stores found in database", data: {} });
        return;
      }

      let completedStores = 0;

      storeNames.forEach(storeName => {
        data[storeName] = [];
        const transaction = db.transaction(storeName, "readonly");
        const store = transaction.objectStore(storeName);
        const cursorRequest = store.openCursor();

        cursorRequest.onsuccess = (event) => {
          const cursor = event.target.result;
          if (cursor) {
            data[storeName].push({ key: cursor.key, value: cursor.value });
            cursor.continue();
          }
        };

        transaction.oncomplete = () => {
          completedStores++;
          if (completedStores === storeNames.length) {
            const jsonData = JSON.stringify(data, null, 2);
            resolve({ data, jsonData });
          }
        };

        transaction.onerror = (event) => {
          reject(`Error accessing store ${storeName}: ${transaction.error}`);
        };
      });
    };
  });
}

dumpKeyvalStore()
  .then(result => {
    console.log("Database dump completed!");
    const blob = new Blob([result.jsonData], { type: 'application/json' });
    const url = URL.createObjectURL(blob);
    const a = document.createElement('a');
    a.href = url;
    a.download = '""" + DUMP_FILENAME + """';
    a.click();
    URL.revokeObjectURL(url);
  })
  .catch(error => console.error("Failed to dump database:", error));"""

HOWTO = (
    "Open the Slush / Sui Wallet extension, right click > Inspect > Console, "
    "paste the script and run it. Then pass the downloaded "
    f"{DUMP_FILENAME} to --file."
)
